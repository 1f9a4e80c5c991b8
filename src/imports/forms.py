from django import forms

class StockSheetUploadForm(forms.Form):
    file = forms.FileField(label="Archivo XLSX/CSV")
    sheet = forms.CharField(label="Nombre de hoja (si es Excel)", required=False)

    def clean_sheet(self):
        s = self.cleaned_data.get("sheet", "")
        return s.strip()  # "" en vez de None
